#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Render ID cards from a template image, a layout config, and student data.
"""

import sys

import idcard_renderer.cli


if __name__ == "__main__":
	sys.exit(idcard_renderer.cli.main())
