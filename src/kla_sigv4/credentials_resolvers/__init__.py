# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from .chain import ChainedCredentialsResolver, create_default_chain
from .environment import EnvironmentCredentialsResolver
from .profile import ProfileCredentialsResolver
from .static import StaticCredentialsResolver

__all__ = (
    "ChainedCredentialsResolver",
    "EnvironmentCredentialsResolver",
    "ProfileCredentialsResolver",
    "StaticCredentialsResolver",
    "create_default_chain",
)
