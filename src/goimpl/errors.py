class ImplError(Exception):
    pass


class InvalidReference(ImplError):
    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"invalid type reference {ref!r}, expected path.to/pkg.Name")


class PackageNotFound(ImplError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"could not load package {path!r}")


class DeclarationNotFound(ImplError):
    def __init__(self, name: str, package: str):
        self.name = name
        self.package = package
        super().__init__(f"could not find type declaration ({name}) in {package}")


class NotAnInterface(ImplError):
    def __init__(self, name: str, package: str):
        self.name = name
        self.package = package
        super().__init__(f"expected {package}.{name} to be an interface")


class DependencyMissing(ImplError):
    def __init__(self, name: str, path: str):
        self.name = name
        self.path = path
        super().__init__(f"missing dependency {path!r} for embedded interface {name}")


class SignatureMismatch(ImplError):
    def __init__(self, name: str, want: str, have: str):
        self.name = name
        self.want = want
        self.have = have
        super().__init__(f"mismatched {name!r} function signatures:\nhave: func{have}\nwant: func{want}")


class FormatError(ImplError):
    """The canonical formatting pass rejected the generated file."""

    def __init__(self, reason: str, content: str):
        self.reason = reason
        self.content = content  # best-effort, unformatted
        super().__init__(f"could not format generated source: {reason}")
