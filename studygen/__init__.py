"""
studygen: turns uploaded study documents into flashcards and quiz questions.
"""

__version__ = '1.0.0'
