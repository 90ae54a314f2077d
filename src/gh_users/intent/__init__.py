"""Intent classification, validation, and dispatch.

The intent layer turns free-form text (or transcribed audio) into a strict `Intent` object via an
external language model, validates it against the fixed action grammar, and dispatches it to the
user command layer.
"""
