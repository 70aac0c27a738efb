"""Services: keying, image I/O, compositing, 3D scene sync and rendering"""
