"""
County demographics question answering.

Answers questions such as "What is the population of Colbert County?" from a
published county spreadsheet.
"""
