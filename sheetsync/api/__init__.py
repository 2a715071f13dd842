"""
SheetSync API package.
"""
