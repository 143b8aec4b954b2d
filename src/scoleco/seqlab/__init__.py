#!/usr/bin/env python

"""Sequence loading, family reconciliation, labeling and alignment.

SequenceRecord -> AnnotatedSequenceRecord -> LabeledSequenceRecord

Each step returns new records; nothing is modified in place.
"""
