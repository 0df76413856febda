"""
Insights module: articles shown on the marketing site, managed through the admin API.
"""
