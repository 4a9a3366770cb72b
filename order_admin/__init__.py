"""
Order Admin — admin service for orders and products backed by a remote REST API.
"""

__version__ = "0.1.0"
