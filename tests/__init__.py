"""
Test package for space_saver.

Unit tests cover each pipeline component in isolation; integration tests
drive whole batches through fakes and temporary directories; regression
tests pin the on-disk safety guarantees of in-place replacement.
"""
