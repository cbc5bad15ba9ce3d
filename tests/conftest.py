from hypothesis import settings

# Subdivision builds Arrow arrays per quadrant; timing varies too much for a deadline
settings.register_profile('quadtree', deadline=None)
settings.load_profile('quadtree')
