"""
Data transfer objects shared across services, views and cogs.
"""
