from reviewer.client.api import ApiError, ReviewClient
from reviewer.client.keeper import SessionKeeper
from reviewer.client.selections import SelectionBoard

__all__ = ['ApiError', 'ReviewClient', 'SessionKeeper', 'SelectionBoard']
