from travelguide.utils.haversine import distance_meters

lat1, lon1 = 59.3268, 18.0717  # Stockholm Palace
lat2, lon2 = 59.3280, 18.0914  # Vasa Museum

dist = distance_meters(lat1, lon1, lat2, lon2)
print(f"Distance: {dist:.1f} meters")
print(f"Distance: {dist / 1000:.3f} km")
