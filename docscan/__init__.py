"""Document Scanner extraction-and-trust pipeline.

Turns photographed checks and receipts into typed records by chaining a
hosted OCR service with a schema-guided JSON extraction service, then
scores the result and flags likely hallucinated output.
"""
