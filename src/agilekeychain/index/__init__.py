from .entries import ENTRY_ARITY, EntryRecord, parse_entries

__all__ = ["ENTRY_ARITY", "EntryRecord", "parse_entries"]
