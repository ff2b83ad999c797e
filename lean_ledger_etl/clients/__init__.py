"""HTTP clients for the FEC API, the document store and push notifications."""
