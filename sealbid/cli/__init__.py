"""
sealbid command line interface.
"""
