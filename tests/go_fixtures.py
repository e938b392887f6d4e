"""Go packages shared by the tests, indexed with the real grammar."""
from goimpl.indexer import index_sources

ROOT = "marwan.io/impl/test_data"
MODELS = f"{ROOT}/models"
CROWD = f"{ROOT}/crowd"
PARTIER = f"{ROOT}/partier"
RIOTER = f"{ROOT}/rioter"
GOER = f"{ROOT}/goer"
DOTTER = f"{ROOT}/dotter"
SIMPLE = f"{ROOT}/simple"
UNDERSCORE = f"{ROOT}/underscore"

IO_SRC = """package io

// Reader is the interface that wraps the basic Read method.
type Reader interface {
	Read(p []byte) (n int, err error)
}

// Writer is the interface that wraps the basic Write method.
type Writer interface {
	Write(p []byte) (n int, err error)
}

// Closer is the interface that wraps the basic Close method.
type Closer interface {
	Close() error
}

// ReadCloser groups the basic Read and Close methods.
type ReadCloser interface {
	Reader
	Closer
}

// WriteCloser groups the basic Write and Close methods.
type WriteCloser interface {
	Writer
	Closer
}
"""

MODELS_SRC = """package models

// Person is a human being
type Person struct {
	Name string
}

// Beverage is an enum
type Beverage int

// Beverage constants
const (
	Water = iota
	Soda
	Alcohol
)

// Theme is theme party after a person
type Theme = Person
"""

CROWD_SRC = """package crowd

// Crowd is a group of people
type Crowd struct{}
"""

PARTIER_SRC = """package partier

import (
	"io"

	"marwan.io/impl/test_data/crowd"
	"marwan.io/impl/test_data/models"
)

// Partier defines a partier interface
type Partier interface {
	Singer
	io.ReadCloser
	io.WriteCloser
	Drink(models.Beverage) error
	BrowsePartyThemes(themes map[models.Theme]struct{}) error
	FavoritePerson() *models.Person
	SendBeverage(chan models.Beverage)
	GoWith(p *models.Person) (err error)
	Fight(reason string) []*Problem
	Hammered(interface {
		DrinkMore(interface {
			Singer
			Fight(reason string) []*Problem
		}) Partier
	}) Partier
}

// Singer sings
type Singer interface {
	Sing(c *crowd.Crowd) error
}

// Problem type
type Problem struct {
	Name string
}
"""

RIOTER_SRC = """package rioter

import "marwan.io/impl/test_data/crowd"

// Rioter riots in a crowd
type Rioter interface {
	Riot(c *crowd.Crowd) error
	Leader() *crowd.Crowd
}
"""

GOER_SRC = """package goer

// Goer goes
type Goer struct{}
"""

DOTTER_SRC = """package dotter

import . "marwan.io/impl/test_data/models"

// Interface uses a dot import type
type Interface interface {
	Drink(Beverage) error
}
"""

SIMPLE_SRC = """package simple

import "marwan.io/impl/test_data/models"

// Interface to be implemented
type Interface interface {
	Drink(models.Beverage) error
}
"""

UNDERSCORE_SRC = """package underscore

import _ "marwan.io/impl/test_data/models"

// Underscore has a blank import
type Underscore struct{}
"""

SOURCES = {
    "io": {"io.go": IO_SRC},
    MODELS: {"models.go": MODELS_SRC},
    CROWD: {"crowd.go": CROWD_SRC},
    PARTIER: {"partier.go": PARTIER_SRC},
    RIOTER: {"rioter.go": RIOTER_SRC},
    GOER: {"goer.go": GOER_SRC},
    DOTTER: {"dotter.go": DOTTER_SRC},
    SIMPLE: {"simple.go": SIMPLE_SRC},
    UNDERSCORE: {"underscore.go": UNDERSCORE_SRC},
}


def build(**overrides):
    """
    Indexes the fixture packages. Keyword overrides replace one package's files:
    build(goer={"goer.go": "..."}) or add new ones by import path via `extra`.
    """
    sources = {path: dict(files) for path, files in SOURCES.items()}
    extra = overrides.pop("extra", {})
    for short, files in overrides.items():
        sources[f"{ROOT}/{short}"] = files
    sources.update(extra)
    return index_sources(sources)
