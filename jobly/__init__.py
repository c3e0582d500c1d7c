"""Jobly: a small job board backed by a relational store."""

__version__ = "0.1.0"
