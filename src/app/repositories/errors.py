class StoreError(Exception):
    """Raised by repository adapters when the account store cannot be read or written"""
