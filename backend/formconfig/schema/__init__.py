"""
Form schema model: sections, fields, structural validation and mutations.
"""
