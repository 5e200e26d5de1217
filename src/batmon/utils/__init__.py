"""Shared helpers: logging, configuration, console output"""
