"""Data models and the parse/validate stages of the ACL upload pipeline."""
