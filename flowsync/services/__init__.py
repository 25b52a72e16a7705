"""
Services

Manifest storage, workflow files, credential schema lookups, the manifest
reconciler, the capture hooks and the bootstrap reconciler.
"""
