#!/usr/bin/env python

"""Command line entry points."""
