"""
Snippetbox — Forms Package
===========================

What:  Decoding and validation of posted HTML forms.

Two failure modes, two responses:
    - Decoding failure (a value of the wrong type): FormDecodeError → 400
    - Validation failure (blank, too long, not permitted): the form is
      re-rendered with 422 and per-field messages

Modules:
    - validator.py: the Validator mixin and reusable check functions
    - models.py:    one pydantic model per HTML form
"""
