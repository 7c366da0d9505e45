"""Shared utility helpers."""

from .json_utils import decode_json_text, json_serializer, to_json_text

__all__ = ["decode_json_text", "json_serializer", "to_json_text"]
