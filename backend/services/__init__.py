"""Services for the TapIn backend"""
