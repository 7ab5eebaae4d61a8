"""
CIR SDK Command-Line Interface
==============================

This package provides the command-line tool for the CIR SDK:

- **circ**: CIR to C skeleton compiler

The tool is a Click-based CLI application with help text and the
shared error reporting of cli.errors.
"""

__all__ = ["circ"]
