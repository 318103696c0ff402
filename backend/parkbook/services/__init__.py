"""Business logic layer. Services own transactions; repositories only flush."""
