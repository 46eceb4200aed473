"""
Model Escrow API: escrow workflow backend for 3D model commissions.
"""
