# Interfaces package
