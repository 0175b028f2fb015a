"""
Boards Backend Application
"""
