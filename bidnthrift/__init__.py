"""BidNThrift marketplace server."""
