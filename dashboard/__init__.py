"""
Rubicon Dashboard API - market data, trading and knowledge-base endpoints.
"""
