"""
Services for the strangeness QA pipeline.
"""
