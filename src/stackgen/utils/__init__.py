"""Shared utilities."""

from stackgen.utils.fileops import atomic_write, dump_json, dump_yaml, write_json, write_yaml

__all__ = ["atomic_write", "dump_json", "dump_yaml", "write_json", "write_yaml"]
