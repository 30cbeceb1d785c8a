"""Embedded seed payloads, one base64 JSON array per seed directory."""
