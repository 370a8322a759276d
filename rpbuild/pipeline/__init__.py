# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Build-and-publish pipeline for rpbuild.

Four steps in a fixed order, each of which must succeed before the next one
starts:

    toolchain update → source sync → release compile → artifact publish

The first failure ends the run. Nothing is retried and nothing is rolled back,
because nothing downstream of the failure has been touched yet.
"""
