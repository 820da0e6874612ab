"""
Maps Lead Extractor - Pipeline Module

Browser session, listing walk, field extraction, validation, email
discovery and export stages.
"""
