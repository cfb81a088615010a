"""
Schema interpretation engine.

Pure functions that turn a form configuration plus the current field values
into the visible fields, their violations and the controls to render. No
I/O; safe to run on every value change.
"""
