"""
Serverless Autoneg Controller - Cloud Run backends for serverless NEG load balancers

Resolves the target Google Cloud project and lists the Cloud Run services
whose load balancer backends the controller manages.
"""

__version__ = "0.1.0"
__author__ = "Serverless Autoneg Controller Team"

from .controller import AutonegController, main

__all__ = ["AutonegController", "main"]
