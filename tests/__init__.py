"""
Test suite for imgstream application.

This module contains all test cases for the application:
- Unit tests for services and models
- Integration tests for complete workflows
- End-to-end tests for user scenarios
"""
