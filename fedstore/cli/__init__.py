"""
fedstore command line interface.

Exposes: fedstore list | counts | export | delete | check-in | health
"""
