"""
Core auction components: engine, escrow, collaborators and persistence.
"""
