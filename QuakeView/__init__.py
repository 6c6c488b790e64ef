"""
QuakeView - Terminal browser for large streaming earthquake catalogues
"""
