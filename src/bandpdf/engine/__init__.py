"""
Engine Package

Band layout, resource caches and the PDF render pass. Import the
pipeline from ``bandpdf.engine.controller``; this package module stays
empty so plugins can import engine leaves without cycles.
"""
