# This project was developed with assistance from AI tools.
"""Underwriting services.

Pure engine modules (formulas, completeness, prefill, assessment, pipeline)
never touch the database. The loans and settings_store modules adapt ORM
rows into the records those modules consume.
"""
