"""
Investment Tracker
Personal stock & mutual fund portfolio with market-data refresh
"""
