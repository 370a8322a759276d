# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
rpbuild: keeps the rectangular_promotion extension module current.

Updates the Rust toolchain, pulls the checkout, builds the crate in release
mode, and publishes the shared library next to the checkout.
"""

__version__ = "0.1.0"
