#!/usr/bin/env python

"""Diet database filtering and prey summaries for blind-snake families."""
