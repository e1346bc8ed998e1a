"""
Test doubles for Railguard.

- doubles.py: scripted generation client and sample checks
- models.py: sample output models (flat, nested, self-referencing)
"""
