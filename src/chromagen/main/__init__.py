"""Studio mixins"""
