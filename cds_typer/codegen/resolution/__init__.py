"""
Type resolution of model elements.

Classifies type references (builtin, user defined, inline, enum, array),
derives class names and propagates keys and draft enablement.
"""
