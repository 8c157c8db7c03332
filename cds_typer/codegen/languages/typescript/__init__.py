"""
TypeScript declarations and JavaScript runtime stubs.
"""
