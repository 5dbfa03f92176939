# Services layer for the shipping quote pipeline
