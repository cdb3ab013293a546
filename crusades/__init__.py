"""
Rhapsody Crusades backend package
"""
