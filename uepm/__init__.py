"""uepm - expose installed npm packages as Unreal Engine plugin links."""

__version__ = "0.3.0"
