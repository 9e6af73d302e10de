"""Core computational modules for hashdemux.

This package contains the main analysis engines:
- hashing: Ambient correction, top-two HTO selection and outlier calling
"""
