"""
Target language printers.

Only TypeScript (with JavaScript runtime stubs) is implemented.
"""
