"""SolForge CLI"""
