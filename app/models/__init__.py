"""
Models package

Speakers and content are free-form JSON documents and have no model class.
"""

from .user import User
