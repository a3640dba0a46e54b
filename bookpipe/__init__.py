"""bookpipe: build the manuscript PDF and publish it to a release tag."""

__version__ = "0.1.0"
