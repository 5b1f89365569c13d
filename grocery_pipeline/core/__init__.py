"""
Domain core: column names, errors, date parsing, monetary repair, config and models.
"""
