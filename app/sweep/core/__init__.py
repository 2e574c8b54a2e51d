"""Core session logic: configuration, risk scoring and scan sessions."""
