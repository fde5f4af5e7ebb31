"""HTTP layer for the docsite viewer"""
