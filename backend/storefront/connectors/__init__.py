"""
External connectors: payment gateway and notification service
"""
