"""Codec, request building, transport and orchestration for dialhook."""
