from clickdown.wire.diagnostics import DecodeError, Diagnostic, ErrorKind, format_path
from clickdown.wire.normalize import FieldKind, FieldRule, field_rules

__all__ = ["DecodeError", "Diagnostic", "ErrorKind", "FieldKind", "FieldRule", "field_rules", "format_path"]
