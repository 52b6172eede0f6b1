"""
E-Commerce Reports
"""
