"""Domain layer (session models, response envelope, fetch results, placeholders).

Domain modules should not depend on UI or perform IO.
"""
