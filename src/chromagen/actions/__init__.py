"""Studio action handlers"""
