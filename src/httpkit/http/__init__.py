"""HTTP building blocks shared by the client and server sides."""
