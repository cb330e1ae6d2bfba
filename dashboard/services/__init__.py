"""
Dashboard services: market data, knowledge base, trading and analysis delegation.
"""
