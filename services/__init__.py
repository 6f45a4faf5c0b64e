"""Application services: the read-side aggregation and the write-side
transactions that the HTTP routes delegate to."""
